import os.path
import os
import re

from paver.tasks import task, cmdopts
from paver.easy import sh


def tell(x):
    print()
    print(("-"*10)+ str(x) + ("-"*10))
    print()

@task
def build(quiet=True):
    """ Builds the toyrsa distribution, ready to be uploaded to pypi. """
    tell("Build dist")
    sh('python setup.py sdist', capture=quiet)

@task
def upload(quiet=False):
    """ Uploads the latest distribution to pypi. """

    lib = open(os.path.join("toyrsa", "__init__.py")).read()
    v = re.findall("VERSION.*=.*['\"](.*)['\"]", lib)[0]

    tell("upload dist %s" % v)
    sh('git tag -a v%s -m "Distribution version v%s"' % (v, v))
    sh('python setup.py sdist upload', capture=quiet)
    tell('Remember to upload tags using "git push --tags"')

@task
def lint(quiet=False):
    """ Run the python linter on toyrsa. """
    tell("Run pylint on the library")
    sh('pylint --disable=missing-docstring toyrsa', capture=quiet)

@task
def test(quiet=False):
    """ Run the module tests and doctests with coverage. """
    tell("Run the tests")
    sh('python -m pytest --cov=toyrsa --cov-report=term-missing toyrsa', capture=quiet)

@task
@cmdopts([
    ('cases=', 'c', 'Number of round trips'),
    ('digits=', 'd', 'Largest prime size in decimal digits'),
])
def selftest(options):
    """ Run random key generation / encryption / decryption round trips. """
    from toyrsa.selftest import run

    cases = int(getattr(options, "cases", 10))
    max_digits = int(getattr(options, "digits", 100))
    tell("Self test: %d cases up to %d digits" % (cases, max_digits))
    result = run(cases, max_digits=max_digits, report=print)
    if not result.ok:
        raise SystemExit(1)

@task
def wc(quiet=False):
    """ Count the toyrsa library code lines. """
    tell("Counting code lines")

    print("\nLibrary code:")
    sh('wc -l toyrsa/*.py', capture=quiet)

    print("\nAdministration code:")
    sh('wc -l pavement.py setup.py', capture=quiet)
