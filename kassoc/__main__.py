"""
CLI entry point, when used as a module: `python -m kassoc`.

Useful for debugging in the IDEs (use the start-mode "Module", module "kassoc").
"""
from kassoc import cli

if __name__ == '__main__':
    cli.main()
