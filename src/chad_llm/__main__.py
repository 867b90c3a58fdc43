"""
Entry point for running chad-llm as a module.

This allows users to run the CLI using:
    python -m chad_llm [command] [options]
"""

from chad_llm.cli.app import main

if __name__ == "__main__":
    main()
