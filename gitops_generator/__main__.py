"""Run the gitops-generator command line tool with `python -m gitops_generator`."""

from .tool.gitops_generator import main

if __name__ == "__main__":
    main()
