from setuptools import setup, find_packages

setup(
    name="efis-checklists",
    version="1.0.0",
    description="EFIS Checklists - Converts aircraft checklists between Garmin, Dynon, GRT, ForeFlight, JSON and PDF formats",
    author="EFIS Checklists Contributors",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["main"],
    python_requires=">=3.8",
    install_requires=[
        "cryptography",  # ForeFlight AES-128-CBC container
        "reportlab",  # PDF export
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        'console_scripts': [
            'efis-checklists=efis_checklists.ui.cli:main',
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Utilities",
        "Environment :: Console",
        "Operating System :: OS Independent",
    ],
)
