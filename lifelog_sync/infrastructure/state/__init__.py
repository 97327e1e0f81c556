"""
Estado persistido en disco: watermark y cache de schema.

Ambos archivos se comparten entre ciclos sin locking entre procesos;
se asume un unico escritor a la vez.
"""
