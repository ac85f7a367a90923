"""
Encode and decode the Flexible and Interoperable data Transfer (FIT)
protocol [1]_.

The wire format lives in `_protocol` (file header, record headers, the
local definition table and the records themselves), leaning on
`_base_types` for turning field bytes into text and back, and on `_crc`
for the checksums. `_profile` holds a small, purely advisory slice of the
FIT profile used to name things in comments.


.. [1] https://developer.garmin.com/fit/protocol/

"""
from fitcsv.fit._reading import read, gen_records
