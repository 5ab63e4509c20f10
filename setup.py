"""Setup configuration for the sports prediction feedback loop."""
from setuptools import setup, find_packages
from pathlib import Path

# Read README for long description
readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text(encoding="utf-8") if readme_file.exists() else ""

setup(
    name="sports-feedback-predictor",
    version="2.0.0",
    description="Weighted ensemble game predictions with outcome validation and weight tuning",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="Green Bier Ventures",
    python_requires=">=3.11",
    packages=find_packages(where=".", exclude=["tests", "tests.*"]),
    package_dir={"": "."},
    install_requires=[
        "pandas>=2.2.3",
        "numpy>=1.26.4",
        "pydantic>=2.9.2",
        "tenacity>=9.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=8.3.3",
            "pytest-asyncio>=0.24.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "run-predictions=scripts.run_predictions:main",
            "validate-predictions=scripts.validate_predictions:main",
            "tune-weights=scripts.tune_weights:main",
            "adopt-weights=scripts.adopt_weights:main",
            "feedback-cycle=scripts.feedback_cycle:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: Scientific/Engineering :: Information Analysis",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
