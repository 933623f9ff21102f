#!/usr/bin/env python
# -*- coding: utf-8 -*-

import setuptools

with open("README.rst", "r", encoding="utf-8") as fh:
    long_description = fh.read()


setuptools.setup(
    name='msvc-code-analysis',
    version='0.1.0',
    keywords=['MSVC', 'CMake', 'static analyzer', 'SARIF'],
    license='MIT',
    description='MSVC code analysis wrapper for CMake projects.',
    long_description=long_description,
    long_description_content_type="text/x-rst",
    zip_safe=False,
    python_requires=">=3.10",
    packages=['msvcanalyzer'],
    extras_require={
        'test': ['pytest']
    },
    entry_points={
        'console_scripts': [
            'msvc-code-analysis = msvcanalyzer.analyze:analyze_build'
        ]
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "License :: OSI Approved :: MIT License",
        "Environment :: Console",
        "Operating System :: Microsoft :: Windows",
        "Intended Audience :: Developers", "Programming Language :: C",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Compilers",
        "Topic :: Software Development :: Quality Assurance"
    ]
)
