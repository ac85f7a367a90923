__version__ = '0.1.0'
# Convert FIT activity files to an editable text format, and back again,
# byte for byte. See `fitcsv._convert` for the conversions themselves.
from fitcsv._convert import (
    fit_to_csv, csv_to_fit, fit_to_text, text_to_fit, FitToCSV, CSVToFit)
from fitcsv._util.exceptions import (
    FitCSVError, FormatError, ChecksumError, UndefinedSlotError,
    TruncatedInputError, IncompleteStreamError)
