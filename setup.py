from setuptools import setup
import site, sys

site.ENABLE_USER_SITE = "--user" in sys.argv[1:]

setup(name='ADAttrDump',
      version='1.0.0',
      description='ADAttrDump.py dumps Active Directory entries over LDAP and decodes the binary and encoded attribute values (security descriptors, SIDs, DNS records, replication metadata, trust info, key credentials) into readable form.',
      author='Cedric Van Bockhaven',
      author_email='cedric@cedric.ninja',
      maintainer='Cedric Van Bockhaven',
      maintainer_email='cedric@cedric.ninja',
      packages=['adattrdump',
                'adattrdump.parser',
      ],
      license='MIT',
      install_requires=['dissect.cstruct>=2.0','frozendict','requests','pwntools>=4.5.0','ldap3'],
      extras_require={'test': ['pytest']},
      classifiers=[
        'Environment :: Console',
        'Intended Audience :: Information Technology',
        'Intended Audience :: Science/Research',
        'Intended Audience :: System Administrators',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Programming Language :: Python :: 3.13',
        'Topic :: Security'
      ],
      entry_points= {
        'console_scripts': ['ADAttrDump.py=adattrdump:main']
      },
      python_requires='>=3.11'
)
