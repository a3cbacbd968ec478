"""ClientScope entrypoint."""

import uvicorn


def cli() -> None:
    """CLI entrypoint."""
    uvicorn.run("clientscope.web.app:create_app", factory=True)


if __name__ == "__main__":
    cli()
