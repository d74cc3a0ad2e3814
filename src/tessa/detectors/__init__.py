"""Детекторы закономерностей в истории прогонов тестов."""
