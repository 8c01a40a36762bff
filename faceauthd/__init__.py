"""Face authentication daemon: enrolment, verification, embedding storage and a PAM helper socket."""

__version__ = "0.1.0"