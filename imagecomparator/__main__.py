"""
Allow running the package with: python -m imagecomparator

Examples:
    python -m imagecomparator Assets/Sprites          # Compare images in a folder
    python -m imagecomparator Assets -t near          # Near-identical pairs too
    python -m imagecomparator config                  # Show configuration
    python -m imagecomparator config --init           # Create example config file
"""

import sys


def show_config() -> int:
    from .engine import has_heif_support
    from .user_config import get_user_config

    config = get_user_config()

    if '--init' in sys.argv or '-i' in sys.argv:
        if config.create_example_config():
            print(f"✓ Created example configuration file at:")
            print(f"  {config.config_file_path}")
            print(f"\nEdit this file to customize Image Comparator settings.")
            return 0
        print(f"✗ Failed to create configuration file.")
        return 1

    print(f"Configuration file: {config.config_file_path}")
    if config.config_file_path.exists():
        print(f"Status: ✓ Found")
    else:
        print(f"Status: ✗ Not found (using defaults)")
        print(f"\nRun 'python -m imagecomparator config --init' to create one.")

    print(f"\nCurrent settings:")
    print(f"  default_tolerance: {config.default_tolerance}")
    print(f"  batch_size: {config.batch_size}")
    print(f"  device: {config.device}")
    print(f"  confirm_image_count: {config.confirm_image_count:,}")
    print(f"  store_cache_size: {config.store_cache_size}")
    print(f"  report_file: {config.report_file}")

    print(f"\nHEIC/HEIF support: {'✓ installed' if has_heif_support() else '✗ not installed (pip install pillow-heif)'}")
    return 0


def main():
    if len(sys.argv) > 1 and sys.argv[1] == 'config':
        # Remove 'config' from argv
        sys.argv.pop(1)
        sys.exit(show_config())

    from .cli import main as cli_main
    sys.exit(cli_main())


if __name__ == '__main__':
    main()
