# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# domain tags
CIRCUIT_VERSION = "CHIPPROOF|IDENTITY|SHA256|v1".encode("utf-8")

# witness layout
HASH_HEX_LENGTH = 64
HASH_SLOT_SIZE = 64
IDENTIFIER_SIZE = 16
WITNESS_SIZE = HASH_SLOT_SIZE + IDENTIFIER_SIZE

# sha-256
SHA256_BLOCK_SIZE = 64
SHA256_WORD_BITS = 32

# digest packing
DIGEST_BITS = 256
SCALAR_CAPACITY = 254
COMMITMENT_SCALARS = (DIGEST_BITS + SCALAR_CAPACITY - 1) // SCALAR_CAPACITY

# compressed point widths
G1_SIZE = 48
G2_SIZE = 96
SCALAR_SIZE = 32
PROOF_SIZE = G1_SIZE + G2_SIZE + G1_SIZE
VK_HEADER_SIZE = 3 * G1_SIZE + 3 * G2_SIZE

# uncompressed affine widths, used for the local proving key
G1_AFFINE_SIZE = 2 * G1_SIZE
G2_AFFINE_SIZE = 2 * G2_SIZE

# multiplicative generator of Fr, also used as the coset shift
FR_GENERATOR = 7
FR_TWO_ADICITY = 32
