from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="isomirs",
    version="1.0.0",
    description="Count, normalize, test and plot miRNA sequence variants (isomiRs) from small RNA sequencing",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="isomirs developers",
    author_email="isomirs@example.com",
    url="https://github.com/isomirs/isomirs",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "numpy",
        "pandas",
        "patsy",
        "statsmodels",
        "pydeseq2>=0.5",
        "matplotlib>=3.6",
    ],
    extras_require={
        "interactive": ["plotly>=5.0.0"],
        "test": ["pytest", "plotly>=5.0.0"],
        "all": ["plotly>=5.0.0"]
    },
    entry_points={
        "console_scripts": [
            "isomirs=isomirs.cli:main",
            "isomirs-norm=isomirs.cli:norm",
            "isomirs-de=isomirs.cli:de",
            "isomirs-merge=isomirs.cli:merge",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Topic :: Scientific/Engineering :: Bio-Informatics",
    ],
    python_requires=">=3.9",
)
