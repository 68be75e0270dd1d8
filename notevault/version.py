"""NoteVault Meta information.
   NoteVault keeps title/content notes encrypted at rest under a master password.
"""
__title__ = 'notevault'
__description__ = (
   'NoteVault keeps title/content notes encrypted at rest '
   'under a master password.'
)
__version__ = '0.1.0'
__copyright__ = 'Copyright (c) 2023 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/phenobarbital/notevault'
