import io

import setuptools

name = 'chaoskube'
desc = 'Fault injection and reversion for Kubernetes workloads.'

author = "chaoskube developers"
author_email = 'chaoskube@users.noreply.github.com'
license = 'Apache License 2.0'

packages = setuptools.find_packages(exclude=('test', 'test.*'))


def read_requirements(path):
    with io.open(path) as f:
        return [l.strip() for l in f if l.strip() and not l.startswith('#')]


test_require = read_requirements('requirements-dev.txt')
install_require = read_requirements('requirements.txt')

setup_params = dict(
    name=name,
    version='0.1.0',
    description=desc,
    author=author,
    author_email=author_email,
    license=license,
    packages=packages,
    py_modules=['run'],
    install_requires=install_require,
    tests_require=test_require,
    extras_require={'test': test_require},
    python_requires='>=3.7'
)


def main():
    """Package installation entry point."""
    setuptools.setup(**setup_params)


if __name__ == '__main__':
    main()
