"""
Setup configuration for adspy package.
"""

from setuptools import setup, find_packages

setup(
    name="adspy",
    version="0.1.0",
    description="Competitive ad gap analysis: one brand against five competitors",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "apify-client>=1.6.0",
        "click>=8.1.0",
        "google-genai>=1.0.0",
        "logfire>=2.0.0",
        "pydantic>=2.5.0",
        "python-dotenv>=1.0.0",
        "supabase>=2.0.0",
        "tenacity>=8.2.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "adspy=adspy.cli.main:cli",
        ],
    },
)
