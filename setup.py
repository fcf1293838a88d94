"""setuptools setup for PersistableTimer.

Install for development:
    pip install -e ".[test]"
"""

from setuptools import setup, find_packages

setup(
    name="persistable-timer",
    version="0.1.0",
    description="Stopwatches and countdowns whose state survives process restarts",
    packages=find_packages(include=["persistable_timer", "persistable_timer.*"]),
    python_requires=">=3.10",
    install_requires=[
        "PyQt6>=6.4",
        "SQLAlchemy>=2.0",
    ],
    extras_require={
        "test": ["pytest>=7"],
    },
)
