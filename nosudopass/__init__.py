""" nosudopass: grant or revoke passwordless sudo via /etc/sudoers.d drop-ins """
