"""
Shared fixtures for the MT940 engine tests.

Sample documents follow the layouts the supported banks actually emit.
"""

import pytest

from mt940_engine.core.config import ParserConfig
from mt940_engine.statements import Mt940Parser


ING_DOCUMENT = """{1:F01INGBNL2ABXXX0000000000}
{2:I940INGBNL2AXXXN}
{4:
:20:P140220000000001
:25:NL00INGB0001234567EUR
:28C:00000
:60F:C140219EUR662,23
:61:1402200220C1,56NTRFEREF//00000000001005
/TRCD/00100/
:86:/EREF/EV12341REP1231456T1234//CNTP/NL32INGB0000012345/INGBNL2A/ING BANK NV INZAKE WEB/AMSTERDAM//REMI/USTD//EV10001REP1000000T1000/
:61:140220D1,57NTRFPREF//00000000001006
:86:/PREF/M000000003333333//REMI/USTD//TOTAAL 1 VZ/ transactiedatum: 19-02-2014
:61:140221C100,00NTRFNONREF
:61:140221D10,00NTRFNONREF
:86:/STRD/CUR/Factuur 2014-001/
:62F:C140221EUR752,22
:64:C140221EUR752,22
:65:C140224EUR752,22
:86:/SUM/4/2/11,57/101,56/
-}"""


GERMAN_DOCUMENT = """:20:STARTUMSE
:25:10020030/1234567890
:28C:00001/001
:60F:C240101EUR1000,00
:61:2401020102D50,00N005NONREF
:86:005?00LASTSCHRIFT?100599?20EREF+E2E-4711?21MREF+M-42
?22CRED+DE98ZZZ09999999999?23SVWZ+Stromrechnung Januar
?30BYLADEMM?31DE89370400440532013000?32Stadtwerke Muster
?33stadt GmbH
:61:2401030103C250,00N051NONREF
:86:051?00UEBERWEISUNG?20Gehalt Januar ?21Danke?32Arbeitgeber AG
:62F:C240103EUR1200,00
-"""


ABN_AMRO_DOCUMENT = """ABNANL2A
940
ABNANL2A
:20:ABN AMRO BANK NV
:25:517852257
:28:19321/1
:60F:C110522EUR3236,28
:61:1105220522D9,N192NONREF
:86:GIRO   428428 KPN - DIGITENNE    BETALINGSKENM.  000000042188659
5314606715                       BETREFT FACTUUR D.D. 20-05-2011
INCL. 1,44 BTW
:61:1105210523D11,59N426NONREF
:86:/TRTP/SEPA OVERBOEKING/IBAN/NL91ABNA0417164300/BIC/ABNANL2A/NAME/J DOE/REMI/Factuur 123/EREF/NOTPROVIDED
:62F:C110523EUR3215,69
-"""


GENERIC_DOCUMENT = """:20:STMT-2024-001
:25:GB82WEST12345698765432
:28C:7/1
:60F:C240301GBP500,00
:61:240301C150,00NTRFINV-1001//BANKREF1
:86:/EREF/INV-1001/ORDP/ACME LTD/REMI/Payment for invoice 1001/
:61:240302D20,00NCHGNONREF
:86:Monthly account fee
:62F:C240302GBP630,00"""


@pytest.fixture
def ing_document():
    return ING_DOCUMENT


@pytest.fixture
def german_document():
    return GERMAN_DOCUMENT


@pytest.fixture
def abn_amro_document():
    return ABN_AMRO_DOCUMENT


@pytest.fixture
def generic_document():
    return GENERIC_DOCUMENT


@pytest.fixture
def parser():
    """Strict parser without metrics recording."""
    return Mt940Parser(ParserConfig(metrics_enabled=False))


@pytest.fixture
def lenient_parser():
    """Parser collecting errors per statement."""
    return Mt940Parser(ParserConfig(strict=False, metrics_enabled=False))
