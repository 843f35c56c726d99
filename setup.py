from __future__ import annotations

import os

import setuptools

from i3companion import __version__

README_PATH = os.path.join(os.path.abspath(os.path.dirname(__file__)),
                           'README.md')
with open(README_PATH, encoding='utf-8') as f:
    LONG_DESCRIPTION = f.read()

setuptools.setup(
    name='i3-companion',
    version=__version__,
    description='Workspace history navigation and bar helpers for i3wm',
    long_description=LONG_DESCRIPTION,
    long_description_content_type='text/markdown',
    license='MIT',
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: End Users/Desktop',
        'Operating System :: POSIX :: Linux',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
    ],
    keywords='i3 i3wm sway workspace history extensions add-ons',
    packages=setuptools.find_packages(exclude=['tests']),
    package_data={'i3companion': ['default_config.toml']},
    python_requires='>=3.8',
    install_requires=[
        'i3ipc ~= 2.2',
        'toml ~= 0.10',
    ],
    extras_require={
        'dev': [
            'pylint ~= 2.14',
            'yapf ~= 0.32',
            'tox ~= 3.25',
            'pytest ~= 7.1',
            # pytest-cov is developed with pytest, so default to the latest
            # version.
            'pytest-cov',
            'pip-tools ~= 7.0',
        ]
    },
    scripts=[
        'scripts/i3-companion',
    ],
)
