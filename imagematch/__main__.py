"""
Allow running the package with: python -m imagematch

Examples:
    python -m imagematch dedupe /path/to/photos        # Cross-folder duplicates to CSV
    python -m imagematch find -i img.jpg -f /photos    # First similar image
    python -m imagematch cache /path/to/photos         # Cache statistics
    python -m imagematch config --init                 # Create example config file
"""

import sys

USAGE = """usage: python -m imagematch {dedupe,find,cache,config} ...

commands:
  dedupe   find similar images across folders (CSV report)
  find     find the first image similar to an input image
  cache    show, prune or clear a fingerprint cache
  config   show configuration, or create one with --init
"""


def _config_command(argv: list[str]) -> int:
    from .user_config import get_user_config

    config = get_user_config()

    if '--init' in argv or '-i' in argv:
        if config.create_example_config():
            print("✓ Created example configuration file at:")
            print(f"  {config.config_file_path}")
            return 0
        print("✗ Failed to create configuration file.")
        return 3

    print(f"Configuration file: {config.config_file_path}")
    if config.config_file_path.exists():
        print("Status: ✓ Found")
    else:
        print("Status: ✗ Not found (using defaults)")
        print("\nRun 'python -m imagematch config --init' to create one.")

    print("\nCurrent settings:")
    print(f"  default_workers: {config.default_workers}")
    print(f"  dedupe_threshold: {config.dedupe_threshold}")
    print(f"  search_threshold: {config.search_threshold}")
    print(f"  dedupe_algorithm: {config.dedupe_algorithm}")
    print(f"  search_algorithm: {config.search_algorithm}")
    print(f"  hash_size: {config.hash_size}")
    print(f"  cache_file: {config.cache_file}")
    print(f"  skip_folders: {', '.join(config.skip_folders)}")
    return 0


def main(argv=None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    if not argv or argv[0] in ('-h', '--help'):
        print(USAGE)
        return 0 if argv else 2

    command, rest = argv[0], argv[1:]
    if command == 'dedupe':
        from .cli import dedupe_main
        return dedupe_main(rest)
    elif command == 'find':
        from .cli import find_main
        return find_main(rest)
    elif command == 'cache':
        from .cli import cache_main
        return cache_main(rest)
    elif command == 'config':
        return _config_command(rest)

    print(f"Unknown command: {command}\n")
    print(USAGE)
    return 2


if __name__ == '__main__':
    sys.exit(main())
