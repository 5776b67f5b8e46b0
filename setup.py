from setuptools import setup, find_packages

setup(
    name="mediascribe",
    version="0.1.0",
    description="Chunked media transcription for LinkedIn, Google Drive and local files",
    author="",
    python_requires=">=3.9",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "aiohttp>=3.9.0",
        "aiofiles>=23.1.0",
        "rich>=12.5.0",
        "pyyaml>=6.0.0",
        "pypubsub>=4.0.3",
        "yt-dlp>=2024.1.1",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "mediascribe=mediascribe.main:main",
        ],
    },
)
