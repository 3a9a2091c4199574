from setuptools import setup, find_packages

setup(
    name="cryptstr",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["main", "manifest_command"],
    python_requires=">=3.8",
    install_requires=[
        'cryptography>=43.0.0',
        'rich>=13.0.0',
        'typer>=0.9.0',
        'filelock>=3.12.0',
    ],
    extras_require={
        'test': ['pytest>=7.0.0'],
    },
    entry_points={
        'console_scripts': [
            'cryptstr=main:app',
        ],
    },
)
