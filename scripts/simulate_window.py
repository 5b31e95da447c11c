#!/usr/bin/env python3
"""
Helper script to simulate windows for WindowOpacity.
Usage:
    ./simulate_window.py "resourceClass|resourceName|caption[|flags]"
    ./simulate_window.py --clear
"""
import sys

SIMULATION_FILE = "/tmp/window_opacity_fake_windows"


def main():
    if len(sys.argv) < 2:
        print(f"Usage: {sys.argv[0]} <Window Info> | --clear")
        print("Example: ./simulate_window.py konsole")
        print("Example: ./simulate_window.py 'firefox|Navigator|New Tab - Firefox'")
        print("Example: ./simulate_window.py 'mpv|mpv|video.mkv|fullscreen'")
        sys.exit(1)

    window_info = sys.argv[1]

    try:
        if window_info == "--clear":
            open(SIMULATION_FILE, "w").close()
            print("Cleared simulated windows")
            return

        with open(SIMULATION_FILE, "a") as f:
            f.write(window_info + "\n")
        print(f"Added window: '{window_info}'")
    except OSError as e:
        print(f"Error writing to simulation file: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
