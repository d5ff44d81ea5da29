"""
Setup script for the html-pdf-service project.

Allows development installation with `pip install -e .`
(test dependencies: `pip install -e .[test]`, then `python -m playwright install chromium`).
"""

from setuptools import setup, find_packages

setup(
    name="html-pdf-service",
    version="1.0.0",
    packages=find_packages(include=["html_pdf_service", "html_pdf_service.*"]),
    python_requires=">=3.11",
    install_requires=[
        "fastapi>=0.110",
        "uvicorn>=0.27",
        "pydantic>=2.5",
        "pydantic-settings>=2.1",
        "python-dotenv>=1.0",
        "python-multipart>=0.0.9",
        "playwright>=1.40",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
            "httpx>=0.26",
            "pypdf>=4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "html-pdf-service=html_pdf_service.__main__:main",
        ],
    },
)
