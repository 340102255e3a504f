from setuptools import setup, find_namespace_packages

setup(
    name="task-manager-backend",
    version="1.0.0",
    packages=find_namespace_packages(include=["app", "app.*"]),
    python_requires=">=3.11",
    install_requires=[
        "fastapi",
        "sqlalchemy[asyncio]",
        "pydantic",
        "pydantic-settings",
        "email-validator",
        "python-jose[cryptography]",
        "passlib[bcrypt]",
        # passlib 1.7.4 predates the bcrypt 4.1 API changes
        "bcrypt==4.0.1",
        "aiosqlite",
        "python-json-logger",
        "uvicorn",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
            "httpx",
        ],
    },
)
