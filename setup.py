"""Setup script for the project."""

from setuptools import setup, find_namespace_packages

setup(
    name="bitewise-api",
    version="1.0.0",
    description="BiteWise nutrition coaching backend",
    packages=find_namespace_packages(
        include=["api*", "config*", "models*", "schemas*", "services*", "utils*"]
    ),
    install_requires=[
        "fastapi>=0.110",
        "uvicorn[standard]>=0.29",
        "pydantic>=2.5",
        "pydantic-settings>=2.1",
        "httpx>=0.27",
        "firebase-admin>=6.5",
        "google-cloud-firestore>=2.16",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
    python_requires=">=3.10",
)
