"""Command implementations for the cctk CLI. Each module exposes run(args)."""
