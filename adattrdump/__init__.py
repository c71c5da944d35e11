from adattrdump.values import render_values

import pwnlib.log, pwnlib.term, logging

import ldap3
from ldap3.core.exceptions import LDAPException

import argparse
import getpass
import pathlib
import sys
import tomllib

DEFAULT_FILTER = '(objectClass=*)'

# LDAP_SERVER_SD_FLAGS_OID with BER SEQUENCE { INTEGER 7 }: owner | group | DACL, no SACL
AVOID_SACL_CONTROL = ('1.2.840.113556.1.4.801', False, bytes.fromhex('3003020107'))

SCOPES = {
    'base': ldap3.BASE,
    'onelevel': ldap3.LEVEL,
    'subtree': ldap3.SUBTREE,
}


class ADAttrDumpError(Exception):
    pass


def loadCredentials(path, bind_dn=None):
    """Return (bind_dn, password) from a TOML credentials file; an explicit bind_dn wins over the file's."""
    try:
        with open(path, 'rb') as fh:
            creds = tomllib.load(fh)
    except OSError as e:
        raise ADAttrDumpError(f"failed to read credentials file {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ADAttrDumpError(f"failed to parse credentials file {path}: {e}") from e

    password = creds.get('password')
    if not isinstance(password, str):
        raise ADAttrDumpError(f"credentials file {path} has no password")
    if bind_dn is None:
        bind_dn = creds.get('bind_dn')
        if not isinstance(bind_dn, str):
            raise ADAttrDumpError(f"credentials file {path} has no bind_dn")
    return bind_dn, password


def resolveCredentials(bind_dn=None, credentials_file=None, prompt=getpass.getpass):
    if credentials_file is not None:
        return loadCredentials(credentials_file, bind_dn)
    if bind_dn is not None:
        return bind_dn, prompt('LDAP password: ')
    raise ADAttrDumpError("at least one of -D/--bind-dn or -c/--credentials-file must be given")


def classifyValue(raw):
    try:
        return raw.decode('utf-8')
    except UnicodeDecodeError:
        return raw


class ADAttrDump(object):

    def __init__(self, url, bind_dn, password, log=None, avoid_sacl=False, paginate=None, out=None):
        self.log = log
        self.out = out or sys.stdout
        self.paginate = paginate
        self.controls = [AVOID_SACL_CONTROL] if avoid_sacl else None
        self.numEntries = 0

        self.server = ldap3.Server(url, get_info=ldap3.NONE)
        self.conn = ldap3.Connection(self.server, user=bind_dn, password=password,
                                     authentication=ldap3.SIMPLE, raise_exceptions=True, auto_referrals=False)

    def connect(self):
        try:
            self.conn.open()
            self.conn.bind()
        except LDAPException as e:
            raise ADAttrDumpError(f"failed to bind to {self.server.host}: {e}") from e

        if self.log:
            self.log.info(f'Bound to {self.server.host} as {self.conn.user}')

    def findBaseDN(self):
        try:
            self.conn.search('', DEFAULT_FILTER, search_scope=ldap3.BASE,
                             attributes=['defaultNamingContext', 'namingContexts'])
        except LDAPException as e:
            raise ADAttrDumpError(f"failed to search for rootDSE: {e}") from e

        for entry in self.conn.response or []:
            attrs = entry.get('raw_attributes', {})
            for key in ('defaultNamingContext', 'namingContexts'):
                values = attrs.get(key)
                if values:
                    return values[0].decode('utf-8')
        raise ADAttrDumpError("failed to find base DN from rootDSE; please specify -b/--base-dn")

    def search(self, base_dn, search_filter=DEFAULT_FILTER, attributes=None, scope=ldap3.SUBTREE):
        attributes = attributes or [ldap3.ALL_ATTRIBUTES]
        try:
            if self.paginate:
                yield from self.conn.extend.standard.paged_search(
                    search_base=base_dn, search_filter=search_filter, search_scope=scope,
                    attributes=attributes, controls=self.controls, paged_size=self.paginate, generator=True)
            else:
                self.conn.search(base_dn, search_filter, search_scope=scope, attributes=attributes,
                                 controls=self.controls)
                yield from self.conn.response or []
        except LDAPException as e:
            raise ADAttrDumpError(f"search failed: {e}") from e

    def entryLines(self, entry):
        attrs = {}
        for key, raw_values in entry.get('raw_attributes', {}).items():
            attrs[key] = [classifyValue(bytes(v)) for v in raw_values]

        object_classes = [v for k, values in attrs.items() if k.lower() == 'objectclass'
                          for v in values if isinstance(v, str)]

        lines = ['', f"dn: {entry['dn']}"]
        for key in sorted(attrs):
            lines.extend(render_values(key, attrs[key], object_classes))
        return lines

    def dump(self, base_dn=None, search_filter=DEFAULT_FILTER, attributes=None, scope=ldap3.SUBTREE):
        if base_dn is None:
            base_dn = self.findBaseDN()
            if self.log:
                self.log.info(f'Base DN: {base_dn}')

        if self.log:
            prog = self.log.progress("Dumping entries", rate=0.1)

        for entry in self.search(base_dn, search_filter, attributes, scope):
            # referrals
            if entry.get('type') != 'searchResEntry':
                continue

            self.out.write('\n'.join(self.entryLines(entry)) + '\n')
            self.numEntries += 1

            if self.log and self.log.term_mode:
                prog.status(f"dumped {self.numEntries} entries")

        if self.log:
            prog.success(f"dumped {self.numEntries} entries")


def main():

    parser = argparse.ArgumentParser(add_help=True, description='Dump Active Directory entries with decoded attribute values', formatter_class=argparse.RawDescriptionHelpFormatter)

    parser.add_argument('-H', '--url', required=True, help="LDAP URL of the server, e.g. ldap://dc01.example.com")
    parser.add_argument('-b', '--base-dn', required=False, help="Search base. Discovered from the rootDSE if not given.")
    parser.add_argument('-D', '--bind-dn', required=False, help="DN to bind as. The password is prompted for unless a credentials file is given.")
    parser.add_argument('-c', '--credentials-file', required=False, type=pathlib.Path, help="TOML file with bind_dn and password keys.")
    parser.add_argument('-s', '--scope', required=False, choices=SCOPES.keys(), default='subtree', help="Search scope. Defaults to subtree.")
    parser.add_argument('--avoid-sacl', action='store_true', help="Only request owner, group and DACL of security descriptors, so unprivileged users still receive them.")
    parser.add_argument('--paginate', required=False, type=int, metavar='N', help="Use paged results with page size N.")
    parser.add_argument('-v', '--verbose', action='store_true', help="Enable debug output.")
    parser.add_argument('filter', nargs='?', default=DEFAULT_FILTER, help=f"LDAP filter. Defaults to {DEFAULT_FILTER}.")
    parser.add_argument('attributes', nargs='*', help="Attributes to return. Defaults to all user attributes.")

    args = parser.parse_args()

    logging.basicConfig(handlers=[pwnlib.log.console])
    log = pwnlib.log.getLogger(__name__)
    log.setLevel(10 if args.verbose else 20)
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if pwnlib.term.can_init():
        pwnlib.term.init()
    log.term_mode = pwnlib.term.term_mode

    try:
        bind_dn, password = resolveCredentials(args.bind_dn, args.credentials_file)
        dumper = ADAttrDump(args.url, bind_dn, password, log, avoid_sacl=args.avoid_sacl, paginate=args.paginate)
        dumper.connect()
        dumper.dump(args.base_dn, args.filter, args.attributes, SCOPES[args.scope])
    except ADAttrDumpError as e:
        log.failure(str(e))
        sys.exit(1)

if __name__ == '__main__':
    main()
