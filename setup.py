"""Setup file for repo-showcase package."""

from setuptools import setup, find_packages

setup(
    name="repo-showcase",
    version="0.1.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.8",
    install_requires=[
        "requests",
        "python-dotenv",
        "python-dateutil"
    ],
    extras_require={
        "dev": [
            "pytest",
            "pytest-asyncio",
            "responses",
            "black",
            "flake8",
            "mypy"
        ]
    },
    entry_points={
        "console_scripts": [
            "repo-showcase=repo_showcase.main:main"
        ]
    }
)
