from setuptools import setup

setup(
    name="stockinfo",
    version="0.1.0",
    description="Personal stock-tracking web application: quotes, watchlists, portfolios and administration",
    python_requires=">=3.9",
    package_dir={
        "": "backend",
        "cli": "cli",
        "cli.commands": "cli/commands",
    },
    packages=["app", "database", "cli", "cli.commands"],
    py_modules=["auth", "config", "fmp_client"],
    package_data={"app": ["static/*.html"]},
    install_requires=[
        "flask>=3.0",
        "flask-session>=0.8.0",
        "flask-cors>=4.0",
        "cachelib>=0.10",
        "werkzeug>=3.0",
        "requests>=2.31",
        "google-auth>=2.20",
        "google-auth-oauthlib>=1.1",
        "python-dotenv>=1.0",
        "gunicorn>=21.2",
        "typer[all]>=0.9.0",
        "rich>=13.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
        ],
    },
    entry_points={
        "console_scripts": [
            "stockinfo=cli.stockinfo:app",
        ],
    },
)
