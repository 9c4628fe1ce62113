#!/usr/bin/env python
"""Setup configuration for JobFit AI Core."""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="jobfit-ai-core",
    version="0.1.0",
    description="AI orchestration core for a career assistant: Gemini calls with retries, tiered models, telemetry and a cover letter critique loop",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "flask>=3.0",
        "flask-cors>=4.0",
        "sqlalchemy>=2.0",
        "pydantic>=2.5",
        "pydantic-settings>=2.1",
        "google-generativeai>=0.5",
        "tenacity>=8.2",
        "requests>=2.31",
        "cryptography>=41.0",
        "python-json-logger>=2.0",
    ],
    extras_require={
        "test": ["pytest>=7.4"],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Environment :: Web Environment",
        "Framework :: Flask",
        "Intended Audience :: Developers",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
