# STUMPY
# Copyright 2019 TD Ameritrade. Released under the terms of the 3-Clause BSD license.
# STUMPY is a trademark of TD Ameritrade IP Company, Inc. All rights reserved.


class InvalidStatistics(ValueError):
    """
    Raised when a sequence cannot be z-normalized because it is empty, contains
    a non-finite value, or has a standard deviation of zero
    """

    pass


class InvalidWindow(ValueError):
    """
    Raised when a window size is not an integer in the range `[1, len(T)]`
    """

    pass


class InvalidPartition(ValueError):
    """
    Raised when the number of diagonals or the number of batches is not a
    positive integer
    """

    pass
