from setuptools import find_namespace_packages, setup

setup(
    name="bt-settings-tests",
    version="0.1.0",
    description="Bluetooth pairing automation of phone settings apps.",
    packages=find_namespace_packages(include=["btpair*"]),
    python_requires=">=3.11",
    install_requires=[
        "absl-py",
        "Appium-Python-Client",
        "mobly",
        "packaging",
        "pyee",
        "selenium",
        "typing_extensions",
    ],
    extras_require={"test": ["pytest"]},
    entry_points={
        "console_scripts": [
            "btpair-settings-suite=btpair.tests.main:run_all",
        ],
    },
)
