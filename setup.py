"""
Setup script for exam-vocab-boost.

Exam Vocab Boost is a terminal-based vocabulary-usage trainer for IELTS
and TOEFL candidates:

1. Diagnostic - timed reading plus usage items to find weak categories
2. Adaptive drills - items weighted toward the learner's weaknesses
3. Cloud backup - push/pull local progress to the hosted service

The 'evb' command is the entry point.
"""

from setuptools import find_namespace_packages, setup

setup(
    name="exam-vocab-boost",
    version="1.0.0",
    description="Adaptive vocabulary-usage drills for IELTS and TOEFL in the terminal",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    author="Exam Vocab Boost",
    packages=find_namespace_packages(include=["src", "src.*"]),
    py_modules=["config"],
    package_data={"src.content": ["data/*.json"]},
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # HTTP
        "httpx>=0.25.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "evb=src.delivery.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Education",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="ielts toefl vocabulary spaced-repetition adaptive-learning cli",
)
