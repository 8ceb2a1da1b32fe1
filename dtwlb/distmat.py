# DTWLB
# Copyright 2019 TD Ameritrade. Released under the terms of the 3-Clause BSD license.

import numpy as np


class distmat(np.ndarray):
    """
    A distance matrix convenience class that subclasses the numpy ndarray

    Parameters
    ----------
    cls : class
        The base class

    input_array : ndarray
        The input `numpy` array to be subclassed

    method : str
        The name of the distance kernel that computed the distances

    pairwise : bool
        `True` if the distances were computed pairwise (a 1-D array) and `False`
        for a cross-distance matrix (a 2-D array)

    row_labels : list, default None
        The labels of the reference time series

    col_labels : list, default None
        The labels of the query time series

    Attributes
    ----------
    method_ : str
        The name of the distance kernel

    pairwise_ : bool
        Whether the distances are pairwise

    row_labels_ : list
        The labels of the reference time series (rows) or `None`

    col_labels_ : list
        The labels of the query time series (columns) or `None`
    """

    def __new__(cls, input_array, method, pairwise, row_labels=None, col_labels=None):
        """
        Create the ndarray instance of our type, given the usual
        ndarray input arguments.  This will call the standard
        ndarray constructor, but return an object of our type.
        It also triggers a call distmat.__array_finalize__

        Parameters
        ----------
        cls : class
            The base class

        input_array : ndarray
            The input `numpy` array to be subclassed

        method : str
            The name of the distance kernel

        pairwise : bool
            Whether the distances are pairwise

        row_labels : list, default None
            The labels of the reference time series

        col_labels : list, default None
            The labels of the query time series
        """
        obj = np.asarray(input_array).view(cls)
        obj._method = method
        obj._pairwise = pairwise
        obj._row_labels = row_labels
        obj._col_labels = col_labels
        # All new attributes will also need to be added to the `__array_finalize__`
        # function below so that "new-from-template" objects (e.g., an array slice)
        # will also contain the same new attributes
        return obj

    def __array_finalize__(self, obj):
        """
        Finalize the array

        Parameters
        ----------
        obj : object
            This is the class object
        """
        if obj is None:  # pragma: no cover
            return
        self._method = getattr(obj, "_method", None)
        self._pairwise = getattr(obj, "_pairwise", None)
        self._row_labels = getattr(obj, "_row_labels", None)
        self._col_labels = getattr(obj, "_col_labels", None)

    @property
    def method_(self):
        """
        The name of the distance kernel

        Parameters
        ----------
        None
        """
        return self._method

    @property
    def pairwise_(self):
        """
        Whether the distances are pairwise

        Parameters
        ----------
        None
        """
        return self._pairwise

    @property
    def row_labels_(self):
        """
        The labels of the reference time series

        Parameters
        ----------
        None
        """
        return self._row_labels

    @property
    def col_labels_(self):
        """
        The labels of the query time series

        Parameters
        ----------
        None
        """
        return self._col_labels
