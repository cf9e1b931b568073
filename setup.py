from setuptools import find_packages, setup

setup(
    name="codeowners-review",
    version="0.1.0",
    license="Apache License 2.0",

    python_requires=">=3.12",
    description="Resolve code owners of pull request files and rank "
                "outstanding owner approvals.",

    packages=find_packages(exclude=("tests", "tests.*")),

    install_requires=[
        "Click>=8.0,<9.0",
        "pathspec>=0.11,<2.0",
        "prometheus-client>=0.17",
        "pydantic>=2.7,<3.0",
        "pydantic-settings[yaml]>=2.3,<3.0",
        "python-json-logger>=3.1",
        "rich>=13.0",
        "ruamel.yaml>=0.18",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },

    test_suite="tests",

    classifiers=[
        'Development Status :: 2 - Pre-Alpha',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.12',
    ],
    entry_points={
        'console_scripts': [
            'codeowners-review = codeowners_review.cli:root',
        ],
    },
)
