"""
cnproc-sentinel - process lifecycle observer built on the netlink process connector.
"""
