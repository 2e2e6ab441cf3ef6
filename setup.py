#!/usr/bin/env python
# -*- coding: utf-8 -*-
import os

from setuptools import setup

ROOT = os.path.dirname(os.path.abspath(__file__))

with open(os.path.join(ROOT, 'neoapi', 'VERSION'), encoding='utf8') as version_file:
    version = version_file.read().strip()


setup(
    name='neoapi',
    version=version,
    description="Adaptive batching client that tracks LLM outputs with the neoapi collection API.",
    author="neoapi.ai",
    author_email='support@neoapi.ai',
    url='https://github.com/neoapi-ai/neoapi-python',
    packages=[
        'neoapi',
    ],
    package_dir={'neoapi': 'neoapi'},
    package_data={'neoapi': ['VERSION']},
    entry_points={
        'console_scripts': [
            'neoapi=neoapi.cli:app'
        ]
    },
    include_package_data=True,
    install_requires=[
        'httpx>=0.24',
        'tenacity>=8.2',
        'pydantic>=2.5',
        'typer>=0.9',
        'rich>=13.0',
    ],
    extras_require={
        'test': [
            'pytest>=7.0',
        ],
    },
    python_requires=">=3.8",
    license="MIT license",
    zip_safe=False,
    keywords='neoapi llm telemetry',
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Natural Language :: English',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
    ]
)
