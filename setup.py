from setuptools import setup, find_packages

with open("requirements.txt", "r") as f:
    requirements = f.read().splitlines()

setup(
    name="wp-tasks",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    install_requires=requirements,
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        'console_scripts': [
            'wp-tasks=wp_tasks.cli:main',
        ],
    },
    description="Task runner for WordPress sites deployed to Pantheon",
    keywords="wordpress, pantheon, deployment, tools",
    python_requires=">=3.8",
)
