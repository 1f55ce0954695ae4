from setuptools import setup, find_packages

setup(
    name="linksite",
    version="0.1.0",
    packages=find_packages(include=["linksite", "linksite.*"]),
    python_requires=">=3.12",
    install_requires=[
        "fastapi>=0.110",
        "uvicorn[standard]>=0.27",
        "pydantic>=2.6",
        "pydantic-settings>=2.2",
        "sqlalchemy[asyncio]>=2.0",
        "aiosqlite>=0.19",
        "asyncpg>=0.29",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
            "httpx>=0.27",
        ],
    },
    entry_points={
        "console_scripts": [
            "linksite-set-admin=linksite.app.admin_cli:main",
        ],
    },
)
