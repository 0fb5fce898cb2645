from setuptools import setup, find_packages

setup(
    name="skillreg",
    version="0.1.0",
    description="skillreg - реестр и установщик Markdown-пакетов (skills / rules) для AI-ассистентов",
    author="skillreg Team",
    package_dir={"": "src"},
    packages=find_packages("src"),
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        "typer>=0.16.0",
        "rich>=13.7.1",
        "PyYAML>=6.0.2",
        "python-dotenv>=1.0.1",
    ],
    extras_require={
        "test": ["pytest>=8.3.2"],
    },
    entry_points={
        "console_scripts": [
            "skillreg=skillreg.apps.cli.app:app",
        ],
    },
)
