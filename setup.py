from setuptools import setup, find_packages

setup(
    name='solaraspect',
    version='1.0.0',
    description='Solar disk and fiducial based aspect determination for sounding rocket payloads',
    packages=find_packages(include=['solaraspect', 'solaraspect.*']),
    python_requires='>=3.11',
    install_requires=[
        'numpy',
        'scipy',
        'opencv-python',
        'astropy',
    ],
    extras_require={
        'test': ['pytest'],
    },
)
