from setuptools import find_packages, setup

setup(
    name="season-highlights-backend",
    version="0.1.0",
    packages=find_packages(include=["shared", "shared.*", "services", "services.*"]),
    install_requires=[
        "fastapi>=0.110",
        "uvicorn[standard]>=0.27",
        "pydantic>=2.5",
        "python-dotenv>=1.0",
        "pyyaml>=6.0",
        "aiohttp>=3.9",
        "openai>=1.30",
        "anthropic>=0.25",
        "python-multipart>=0.0.9",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
            "httpx>=0.27",
        ],
    },
    python_requires=">=3.11",
    description="Backend for condensing a TV season into a highlight video with subtitles or narration",
)
