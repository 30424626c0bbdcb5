import os
from setuptools import setup, find_packages
from setuptools.command.build_py import build_py as _build

CLASSIFIERS = [
    'Operating System :: POSIX',
    'Operating System :: MacOS :: MacOS X',
    'Intended Audience :: Developers',
    'Programming Language :: Python',
    'Programming Language :: Python :: 3',
    'Topic :: Internet :: WWW/HTTP :: WSGI :: Application',
    'Topic :: Software Development :: Libraries :: Application Frameworks'
]

PYDIR = 'python'

def get_version():
    out = "dev"
    pkgdir = os.environ.get('PACKAGE_DIR', os.path.dirname(os.path.abspath(__file__)))
    versfile = os.path.join(pkgdir, 'VERSION')
    if os.path.exists(versfile):
        with open(versfile) as fd:
            parts = fd.readline().split()
        if len(parts) > 0:
            out = parts[-1]
    else:
        out = "(unknown)"
    return out

def write_version_mod(version):
    versmodf = os.path.join(PYDIR, 'hyperaction', "version.py")
    with open(versmodf, 'w') as fd:
        fd.write('"""')
        fd.write("""
An identification of the package version.  Note that this module file gets 
(over-) written by the build process.  
""")
        fd.write('"""\n\n')
        fd.write('__version__ = "')
        fd.write(version)
        fd.write('"\n')

class build(_build):

    def run(self):
        write_version_mod(get_version())
        _build.run(self)

setup(name='hyperaction',
      version=get_version(),
      description="hyperaction: a framework for hypermedia REST APIs built from declared actions",
      package_dir={'': PYDIR},
      packages=find_packages(PYDIR, include=['hyperaction', 'hyperaction.*']),
      install_requires=[ 'PyJWT', 'PyYAML', 'jsonschema' ],
      extras_require={ 'test': [ 'pytest' ] },
      python_requires='>=3.8',
      cmdclass={'build_py': build},
      classifiers=CLASSIFIERS,
      zip_safe=False
)
