from setuptools import setup, find_packages

setup(
    name='order_reconciler',
    version='1.0.0',
    package_dir={'': 'src'},
    packages=find_packages(where='src'),
    python_requires='>=3.10',
    install_requires=[
        'pyyaml>=6.0',
        'PyMuPDF>=1.23.0',
        'openpyxl>=3.1.0',
        'python-dotenv>=1.0.0',
    ],
    extras_require={
        'test': [
            'pytest>=7.4.0',
            'pytest-cov>=4.1.0',
        ],
        'dev': [
            'pytest>=7.4.0',
            'pytest-cov>=4.1.0',
            'black>=23.0.0',
            'flake8>=6.0.0',
            'mypy>=1.5.0',
        ]
    },
    entry_points={
        'console_scripts': [
            'order-reconciler=order_reconciler.cli.main:main',
        ],
    },
)
