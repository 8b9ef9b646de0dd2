from setuptools import setup, find_packages

setup(
    name="uk_weather_tools",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "google-adk",
        "mcp>=1.0,<2",
        "aiohttp>=3.9.0",
        "pydantic>=2.0",
        "python-dotenv",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "uk-weather-mcp=uk_weather_tools.weather_server:main",
        ],
    },
    python_requires=">=3.10",
)
