"""Run the porter-helm3 command line tool with `python -m porter_helm3`."""

from porter_helm3.tool.porter_helm3 import main

if __name__ == "__main__":
    main()
