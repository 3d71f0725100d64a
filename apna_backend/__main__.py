"""Run the API with uvicorn: ``python -m apna_backend``."""

import os

import uvicorn


def main() -> None:
    uvicorn.run(
        "apna_backend.main:app",
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "8000")),
        proxy_headers=True,
    )


if __name__ == "__main__":
    main()
