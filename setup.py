#!/usr/bin/python3
# Setup file for gitlet
# Copyright (C) 2026 The gitlet authors
# SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-or-later

from setuptools import setup

setup(
    name="gitlet",
    version="0.1.0",
    description="Minimal git-compatible content-addressable object store",
    license="Apache-2.0 OR GPL-2.0-or-later",
    packages=["gitlet"],
    package_data={"": ["py.typed"]},
    python_requires=">=3.10",
    install_requires=["urllib3>=2.2.2"],
    entry_points={"console_scripts": ["gitlet=gitlet.cli:_main"]},
    classifiers=[
        "Development Status :: 3 - Alpha",
        "License :: OSI Approved :: Apache Software License",
        "Programming Language :: Python :: 3",
        "Operating System :: POSIX",
        "Topic :: Software Development :: Version Control",
    ],
)
