import setuptools

import lap_recorder

with open("README.md", "r") as fh:
    long_description = fh.read()

setuptools.setup(
    name="lap_recorder",
    version=lap_recorder.__version__,
    author="Chris Hannam",
    author_email="ch@chrishannam.co.uk",
    description="Record F1 25 laps and telemetry from the game's UDP stream.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/chrishannam/f1-2021",
    packages=setuptools.find_packages(exclude=("tests", "examples", "data")),
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.8",
    install_requires=[
        "click",
        "fastavro",
        "flask",
        "influxdb-client",
        "kafka-python<3",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    include_package_data=True,
    entry_points={
        "console_scripts": [
            "lap_recorder=lap_recorder.main:cli",
        ]
    },
)
