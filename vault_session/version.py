"""Vault Session Meta information.
   Vault Session keeps an authenticated, self-renewing session against
   HashiCorp Vault and exposes a simple key/value interface over it.
"""
__title__ = 'vault_session'
__description__ = (
   'Vault Session keeps an authenticated, self-renewing session '
   'against HashiCorp Vault.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2023 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
