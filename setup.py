from setuptools import setup, find_packages

setup(
    name='pyarc',
    version='0.1.0',
    description='Automatic reference counting runtime with strong, weak and unowned references',
    package_dir={'': 'src'},
    packages=find_packages('src'),
    python_requires='>=3.8',
    extras_require={
        'test': ['pytest'],
        'bench': ['psutil'],
    },
    entry_points={
        'console_scripts': ['pyarc-demo = pyarc.cli:main'],
    },
)
