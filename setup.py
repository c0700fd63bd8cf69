"""Setup configuration for review_latency"""

from setuptools import setup, find_packages

setup(
    name="github-review-latency",
    version="0.1.0",
    description=(
        "CLI tool for GitHub pull request review latency: business-hour time "
        "from review request to first response and to approval."
    ),
    author="GitHub Review Latency Contributors",
    author_email="",
    python_requires=">=3.10",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=[
        "requests>=2.28.0",
        "python-dotenv>=1.0",
        "pytz>=2023.3",
        "matplotlib>=3.7",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "black>=22.0",
            "flake8>=4.0",
            "mypy>=0.950",
        ],
    },
    entry_points={
        "console_scripts": [
            "github-review-latency=review_latency.main:main",
        ],
    },
)
