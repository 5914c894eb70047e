"""
Setup script for Markdown Archiver.
"""

from setuptools import setup
import os

# Read the contents of README.md
this_directory = os.path.abspath(os.path.dirname(__file__))
with open(os.path.join(this_directory, 'README.md'), encoding='utf-8') as f:
    long_description = f.read()

# Read version from markdown_archiver.py
with open(os.path.join(this_directory, 'markdown_archiver.py'), encoding='utf-8') as f:
    for line in f:
        if line.startswith('__version__'):
            version = line.split('=')[1].strip().strip('"\'')
            break

setup(
    name="markdown-archiver",
    version=version,
    description="Makes markdown documents self-contained by embedding images as base64 data URIs",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="",
    author_email="",
    url="",
    # Flat layout: every module lives at the top level
    py_modules=["archive_errors", "archiver_options", "base64_encoder", "cli_parser",
                "http_client", "image_embedder", "logger_setup", "markdown_archiver",
                "markdown_processor", "utils"],
    entry_points={
        "console_scripts": [
            "markdown-archiver=markdown_archiver:main",
        ],
    },
    install_requires=[
        "httpx>=0.24.0",
        "mistune>=3.0.0",
    ],
    extras_require={
        "test": [
            "pillow>=8.0.0",
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Text Processing :: Markup :: Markdown",
        "Topic :: Utilities",
    ],
    python_requires=">=3.9",
)
