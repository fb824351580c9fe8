"""
Setup configuration for the taskloop package
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="taskloop",
    version="1.0.0",
    author="Your Name",
    author_email="your.email@example.com",
    description="An autonomous coding loop that drives agent CLIs until verification gates pass",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/yourusername/taskloop",
    packages=find_packages(include=["taskloop", "taskloop.*", "ui", "ui.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Libraries",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.10",
    install_requires=[
        "fastapi>=0.100.0",
        "uvicorn[standard]>=0.23.0",
        "pydantic>=2.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-cov>=4.0",
            "httpx>=0.24.0",
        ],
        "dev": [
            "pytest>=7.0",
            "pytest-cov>=4.0",
            "httpx>=0.24.0",
            "black>=23.0",
            "flake8>=6.0",
            "mypy>=1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "taskloop=taskloop.cli:main",
        ],
    },
)
