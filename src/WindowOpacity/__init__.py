from .config_loader import ConfigLoader, ConfigValidationError, KWinRcConfigLoader
from .exclusion_matcher import ExclusionMatcher
from .exclusion_patterns import ParseResult, PatternSet, parse
from .models import KWinWindow, window_identity
from .opacity_policy import OpacityPolicy, clamp_opacity
from .pattern_cache import PatternCache
from .transparency import TransparencyController
from .window_monitor import WindowMonitor

__all__ = ['parse', 'ParseResult', 'PatternSet', 'PatternCache', 'ExclusionMatcher', 'OpacityPolicy',
           'clamp_opacity', 'KWinWindow', 'window_identity', 'ConfigLoader', 'KWinRcConfigLoader',
           'ConfigValidationError', 'WindowMonitor', 'TransparencyController']
