"""
Data structures of the K8s API as seen by the clients: resource identities,
raw bodies, discovery objects, protobuf message schemas, credentials.

All the functions here are purely data-manipulative and computational.
No external calls or any i/o activities are done here.
"""
