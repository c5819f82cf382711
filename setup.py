from setuptools import setup, find_packages

# Read the contents of your README file
with open('README.md', encoding='utf-8') as f:
    long_description = f.read()

# Read the contents of the requirements file
with open('requirements.txt') as f:
    requirements = [line.strip() for line in f if line.strip() and not line.startswith('#')]

setup(
    name='spzcodec',
    version='0.3',
    author='Francesco Fugazzi',
    description='Reader, writer and converter for SPZ compressed 3D Gaussian Splatting files',
    long_description=long_description,
    long_description_content_type='text/markdown',
    url='https://github.com/francescofugazzi/3dgsconverter',
    packages=find_packages(exclude=['tests', 'tests.*']),
    install_requires=requirements,
    extras_require={
        'test': ['pytest'],
    },
    classifiers=[
        'Programming Language :: Python :: 3',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
    ],
    python_requires='>=3.8',
    entry_points={
        'console_scripts': [
            'spzcodec=spzcodec.main:main',
        ],
    },
)
