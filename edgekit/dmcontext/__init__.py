"""Device-management records, value conversion, expressions, a device registry and messages."""