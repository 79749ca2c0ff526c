from setuptools import setup, find_namespace_packages

setup(
    name='atmfjstc-archive-records',
    version='0.3.0',

    author_email='atmfjstc@protonmail.com',

    package_dir={'': 'src'},
    packages=find_namespace_packages(where='src', include=['atmfjstc', 'atmfjstc.*']),

    install_requires=[
    ],

    extras_require={
        'test': [
            'pytest>=7',
        ],
    },

    zip_safe=True,

    description="Models and decoders for the fixed-layout header records of the ar and dump archive formats",

    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Topic :: System :: Archiving",
        "Topic :: System :: Archiving :: Backup",
        "Typing :: Typed",
    ],
    python_requires='>=3.8',
)
