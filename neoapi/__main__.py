"""Allow neoapi to be executable through `python -m neoapi`."""
from neoapi.cli import app


if __name__ == "__main__":  # pragma: no cover
    app(prog_name="neoapi")
