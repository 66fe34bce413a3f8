from setuptools import setup, find_packages

import django_movedocs

PACKAGES = find_packages(exclude=["dev_env", "docs", "assets", "docs.source"])

setup(
    extras_require={
        "dev": ["pylint"],
        "test": ["pytest", "pytest-django"]
    },
    dependency_links=[],
    name="django-movedocs",
    version=django_movedocs.__version__,
    packages=PACKAGES,
    license=django_movedocs.__license__,
    keywords="django, moving, receipts, payments, installments, ledger, versioning, notifications",
    author=django_movedocs.__author__,
    author_email=django_movedocs.__email__,
    description="Receipt, payment ledger & document notification backend for Django. Receipt types, "
    + "installment payments, version history, notification lifecycle",
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        "django>=4.2",
        "faker>=15.3.3",
        "markdown>=3.4.1",
        "tzdata; sys_platform == 'win32'",
    ],
    classifiers=[
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: Implementation :: CPython",
        "Topic :: Office/Business :: Financial",
        "Development Status :: 3 - Alpha",
        "Framework :: Django :: 4.2",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: GNU General Public License v3 or later (GPLv3+)",
    ],
)
