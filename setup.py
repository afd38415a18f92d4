from setuptools import find_packages
from setuptools import setup


version = '0.1.0'


def read_requirements(path):
    requires = []
    with open(path) as f:
        for line in f:
            req = line.split('#')[0].strip()
            if req:
                requires.append(req)
    return requires


install_requires = read_requirements('requirements.txt')
test_install_requires = read_requirements('requirements_test.txt')


setup(
    name='scikit-collision',
    version=version,
    description='Distance field based collision checking for robots',
    long_description=open('README.md').read(),
    long_description_content_type='text/markdown',
    license='MIT',
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Developers',
        'Natural Language :: English',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Programming Language :: Python :: 3.13',
        'Programming Language :: Python :: Implementation :: CPython',
    ],
    packages=find_packages(include=['skcollision', 'skcollision.*']),
    zip_safe=False,
    python_requires='>=3.9',
    install_requires=install_requires,
    extras_require={
        'test': test_install_requires,
        'all': test_install_requires,
    },
)
