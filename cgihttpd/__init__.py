"""A small threaded HTTP/1.1 server with CGI support, a directory lister and sample guestbook programs."""

__version__ = "0.5.0"