# setup.py
from setuptools import setup, find_packages

setup(
    name="url_crawler",
    version="0.1.0",
    description="Depth-bounded concurrent URL crawler",
    packages=find_packages(exclude=("tests", "tests.*")),
    install_requires=[
        "beautifulsoup4>=4.12",
        "click>=8.1",
        "pydantic>=2.5",
        "requests>=2.31",
        "urllib3>=1.26",
    ],
    extras_require={
        "test": ["pytest>=7.4"],
    },
    entry_points={
        "console_scripts": [
            "url-crawler=url_crawler.cli:cli",
        ],
    },
    python_requires=">=3.11",
)
