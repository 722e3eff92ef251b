import pathlib

from setuptools import find_packages, setup

HERE = pathlib.Path(__file__).parent

long_description = (HERE / "README.md").read_text()


def get_version() -> str:
    fpath = HERE / "sqlnames" / "__init__.py"
    with fpath.open() as f:
        for line in f:
            if line.startswith("__version__"):
                return line.split('"')[1]
    raise Exception(f"version information not found in {fpath}")


setup(
    name="sqlnames",
    version=get_version(),
    packages=find_packages(".", exclude=["tests"]),
    include_package_data=True,
    license="PostgreSQL",
    description="Extract named queries from SQL files annotated with '-- name:' comments.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 5 - Production/Stable",
        "License :: OSI Approved :: PostgreSQL License",
        "Programming Language :: Python :: 3",
        "Topic :: Database",
        "Topic :: Text Processing",
    ],
    keywords="sql queries parser annotations",
    python_requires=">=3.9",
    install_requires=[
        "attrs >= 17, !=21.1",
    ],
    extras_require={
        "dev": [
            "black >= 23.1.0",
            "check-manifest",
            "codespell",
            "flake8",
            "mypy",
        ],
        "testing": [
            "pytest",
        ],
    },
    zip_safe=False,
)
