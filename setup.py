from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="jobhub",
    version="0.1.0",
    author="",
    author_email="",
    description="Job-execution hub using SQLite: register workers, run payloads now or on cron, query outcomes and logs.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["test", "test.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
    ],
    python_requires=">=3.10",
    install_requires=[
        "decologr",
        "croniter>=1.3",
    ],
    extras_require={
        "rich": ["decologr[rich]"],
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "jobhub=jobhub.cli:main",
        ],
    },
)
