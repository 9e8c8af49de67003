from setuptools import setup, find_packages

setup(
    name="camrouter",
    version="0.1.0",
    description="Zone-driven camera routing and switched streams for a vision coprocessor, using PyAV",
    author="Vision Coprocessor Team",
    packages=find_packages(exclude=["tests", "tests.*", "examples"]),
    include_package_data=True,
    install_requires=[
        "av>=12.3.0",
        "Pillow>=10.4.0",
        "PyYAML>=6.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    python_requires=">=3.8",
    entry_points={
        "console_scripts": [
            "camrouter=camrouter.main:main",
        ],
    },
)
