"""Command-line interface."""
from flakesim.app import main


if __name__ == "__main__":
    main()
