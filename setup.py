# setup.py
from setuptools import setup, find_packages

setup(
    name="financeai",
    version="0.1.0",
    description="Spending summaries, budget tracking and an AI advisor over bank transaction data",
    author="Your Name",
    author_email="you@example.com",
    url="https://github.com/yourusername/financeai",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={
        "financeai": ["data/*.yaml"],
        "webapp": ["templates/*.html"],
    },
    python_requires=">=3.10",
    install_requires=[
        "click>=7.0",
        "pyyaml>=5.3",
        "python-dotenv>=1.0",
        "huggingface_hub>=0.23",
        "fastapi>=0.110",
        "pydantic>=2.0",
        "jinja2>=3.0",
        "python-multipart>=0.0.7",
        "uvicorn>=0.27",
        "mcp>=1.0,<2",
        "anyio>=4.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "httpx>=0.27",
        ],
    },
    entry_points={
        "console_scripts": [
            "financeai=financeai.cli:main",
            "financeai-mcp=financeai.mcp_server:main",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
)
