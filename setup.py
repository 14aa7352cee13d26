from setuptools import find_packages, setup

setup(
    name="chopsticks",
    version="0.1.0",
    description="LiteRT demo: load a .tflite model, compile it, run one inference",
    author="Relja",
    package_dir={"": "src"},
    packages=find_packages("src"),
    python_requires=">=3.10",
    install_requires=[
        "numpy>=1.24",
        "ai-edge-litert>=1.2",
    ],
    extras_require={
        "dev": [
            "pytest>=7",
        ],
    },
    entry_points={
        "console_scripts": [
            "chopsticks=chopsticks.demo:main",
        ],
    },
    zip_safe=False,
)
