"""Setup script for Tideways MCP Server."""

from setuptools import setup, find_packages
import os

# Read the README file
def read_readme():
    readme_path = os.path.join(os.path.dirname(__file__), 'README.md')
    if os.path.exists(readme_path):
        with open(readme_path, 'r', encoding='utf-8') as f:
            return f.read()
    return "Tideways MCP Server - Model Context Protocol server for Tideways performance monitoring"

setup(
    name='tideways-mcp-server',
    version='0.1.0',
    description='MCP (Model Context Protocol) server for Tideways performance monitoring',
    long_description=read_readme(),
    long_description_content_type='text/markdown',
    author='Tideways MCP Server Team',
    author_email='dev@example.com',

    packages=find_packages(include=['tideways_mcp_server', 'tideways_mcp_server.*']),
    python_requires='>=3.10',
    install_requires=[
        'requests>=2.31.0',
        'pydantic>=2.0.0',
        'click>=8.1.0',
        'python-dotenv>=1.0.0',
        'PyYAML>=6.0',
        'mcp>=1.0.0,<2',
    ],

    extras_require={
        'toml': ['tomli>=2.0.0'],
        'dev': [
            'pytest>=7.4.0',
            'pytest-asyncio>=0.21.0',
            'pytest-cov>=4.1.0',
            'black>=23.0.0',
            'flake8>=6.0.0',
            'mypy>=1.5.0',
        ],
    },

    entry_points={
        'console_scripts': [
            'tideways-mcp-server=tideways_mcp_server.cli:main',
        ],
    },

    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Developers',
        'Topic :: System :: Monitoring',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
    ],

    keywords='tideways monitoring apm mcp model-context-protocol ai',

    include_package_data=True,
    zip_safe=False,
)
