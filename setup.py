from __future__ import annotations

from setuptools import find_packages, setup

setup(
    name="movie-catalog",
    version="0.1.0",
    # Repo convention: backend code lives under `backend/` and is imported as
    # top-level packages (`import domain`, `import server`, ...).
    package_dir={"": "backend"},
    packages=find_packages(where="backend"),
    python_requires=">=3.10",
    install_requires=[
        "pydantic==2.10.6",
        "fastapi>=0.110",
        "uvicorn>=0.29",
        "asyncpg>=0.29",
        "aiohttp>=3.9",
        "python-dotenv>=1.0",
    ],
    extras_require={
        # Test runner + FastAPI TestClient transport.
        "test": [
            "pytest>=8.0",
            "httpx>=0.27",
        ],
    },
)
